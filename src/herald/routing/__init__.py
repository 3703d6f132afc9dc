"""Trie-based matching of request paths to schema operations."""

from herald.routing.router import Router, Segment, parse_path

__all__ = ["Router", "Segment", "parse_path"]
