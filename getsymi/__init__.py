"""getsymi - bootstrap the symi CLI and its Node.js runtime."""

__version__ = "0.3.0"
