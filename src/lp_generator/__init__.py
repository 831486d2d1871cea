"""lp-generator: validated LLM generation for landing-page content and styling."""

__version__ = "0.1.0"
