"""i18n-keygen: rewrite hard-coded JSX text into translation-key lookups."""

__version__ = "0.3.0"
