"""bindfix - bind-mount permission normalization for dev containers."""

__version__ = "0.1.0"
