"""Security checks for Terraform AWS configurations, applied to blocks built in memory."""

__version__ = "0.1.0"