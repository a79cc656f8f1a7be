"""eb-deploy - deploys configuration bundles to AWS Elastic Beanstalk."""

__version__ = "0.1.0"
