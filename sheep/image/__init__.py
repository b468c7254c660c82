"""Root filesystem image detection and installation."""
