from askitypes.catalog.registry import TypeCatalog, parse_declaration

__all__ = ["TypeCatalog", "parse_declaration"]
