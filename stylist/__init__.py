"""AI Product Stylist: composite a product onto a model photo with Gemini."""

__version__ = "1.0.0"
