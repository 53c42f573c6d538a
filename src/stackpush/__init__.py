"""Push CloudFormation stacks and Lambda functions from a CI/CD pipeline."""

__version__ = "0.4.0"
