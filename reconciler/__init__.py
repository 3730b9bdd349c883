"""Stack Reconciler — drive Terraform stacks on behalf of a project model."""

__version__ = "0.1.0"
