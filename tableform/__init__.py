"""Contract table form: pasted spreadsheet tables mapped to email recipients."""

__version__ = "0.1.0"
