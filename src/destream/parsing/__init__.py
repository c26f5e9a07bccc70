"""
Input parsing for destream.
"""

from destream.parsing.input import extract_guid, parse_cli_input, parse_input_file

__all__ = ["extract_guid", "parse_cli_input", "parse_input_file"]
