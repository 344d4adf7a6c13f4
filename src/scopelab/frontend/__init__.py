from .symbols import Symbol, SymbolSyntaxError, format_symbol, is_syntactic, parse_symbol

__all__ = ["Symbol", "SymbolSyntaxError", "format_symbol", "is_syntactic", "parse_symbol"]
