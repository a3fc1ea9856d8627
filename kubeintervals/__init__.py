"""kubeintervals: Kubernetes event stream to timeline interval normalization."""

__version__ = "0.1.0"
