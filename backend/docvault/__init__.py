"""DocVault - versioned documents with role-based visibility and asynchronous malware scanning."""

__version__ = "0.1.0"
