"""Application bundle builder.

The bundle is a zip holding a single Elastic Beanstalk configuration file
(``Dockerrun.aws.json``) whose image tag placeholder has been replaced with
the commit being deployed.
"""

import io
import zipfile
from pathlib import Path

from eb_deploy.utils.logging import get_logger

# Fixed entry timestamp so identical inputs give identical archives
ZIP_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class BundleBuilder:
    """Builds in-memory application bundles from per-app templates."""

    def __init__(
        self,
        apps_dir: str | Path,
        template_name: str = "Dockerrun.aws.json",
        placeholder: str = "{{TAG}}",
    ):
        self.apps_dir = Path(apps_dir)
        self.template_name = template_name
        self.placeholder = placeholder
        self.logger = get_logger("bundle")

    def template_path(self, app_name: str) -> Path:
        return self.apps_dir / app_name / self.template_name

    def read_template(self, app_name: str) -> str:
        """Read an application's bundle template."""
        path = self.template_path(app_name)
        if not path.is_file():
            raise FileNotFoundError(f"Bundle template not found: {path}")
        return path.read_text(encoding="utf-8")

    def render(self, template: str, commit_hash: str) -> str:
        """Substitute the commit tag into template text."""
        return template.replace(self.placeholder, f":{commit_hash}")

    def package(self, contents: str) -> bytes:
        """Zip rendered template text into a single-entry archive."""
        entry = zipfile.ZipInfo(self.template_name, date_time=ZIP_ENTRY_DATE_TIME)
        entry.compress_type = zipfile.ZIP_DEFLATED
        entry.external_attr = 0o644 << 16

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr(entry, contents.encode("utf-8"))
        return buffer.getvalue()

    def build(self, app_name: str, commit_hash: str) -> bytes:
        """Build the zipped application bundle for a commit.

        Args:
            app_name: Local application name (folder under ``apps_dir``)
            commit_hash: Commit written into the image tag

        Returns:
            The serialized zip archive

        Raises:
            FileNotFoundError: If the template does not exist
        """
        bundle = self.package(self.render(self.read_template(app_name), commit_hash))
        self.logger.debug(
            "bundle.built",
            app=app_name,
            template=str(self.template_path(app_name)),
            size=len(bundle),
        )
        return bundle
