"""lanchanto: deploy GitHub Actions artifacts on workflow_run webhooks."""

__version__ = "0.3.0"
