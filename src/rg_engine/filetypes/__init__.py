"""Glob matching and file-type relevance."""

from .catalog import (
    FileType,
    TypeCatalogError,
    parse_type_list,
    query_type_catalog,
    relevant_file_type,
)
from .glob import compile_glob, glob_matches, glob_to_regex

__all__ = [
    "FileType",
    "TypeCatalogError",
    "compile_glob",
    "glob_matches",
    "glob_to_regex",
    "parse_type_list",
    "query_type_catalog",
    "relevant_file_type",
]
