#!/usr/bin/env python3
"""
Section classifier
Groups listed files into sections by their two-letter key prefix ("en-", "es-", ...)
"""

import re
from typing import List, Dict, Any

UNSORTED = 'unsorted'

PREFIX_PATTERN = re.compile(r'^([a-z]{2})-')


class Section:
    """A display group of files sharing a key prefix"""

    def __init__(self, prefix: str, display_name: str, files: List[Dict[str, Any]]):
        self.prefix = prefix
        self.display_name = display_name
        self.files = files

    @property
    def keys(self) -> List[str]:
        return [file_info['key'] for file_info in self.files]

    def __eq__(self, other):
        if not isinstance(other, Section):
            return NotImplemented
        return (self.prefix, self.display_name, self.files) == (other.prefix, other.display_name, other.files)

    def __repr__(self):
        return f"Section({self.display_name}: {len(self.files)} files)"


def section_prefix(key: str) -> str:
    """Return the section a key belongs to"""
    match = PREFIX_PATTERN.match(key)
    return match.group(1) if match else UNSORTED


def classify(files: List[Dict[str, Any]]) -> List[Section]:
    """Sort files into sections based on their key prefix

    Prefix sections come first in alphabetical order, the unsorted section
    last and only when something landed in it. Files inside a section are
    ordered by key. The input list is left untouched.
    """
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    unsorted: List[Dict[str, Any]] = []

    for file_info in files:
        key = file_info.get('key')
        if not key:
            continue

        prefix = section_prefix(key)
        if prefix == UNSORTED:
            unsorted.append(file_info)
        else:
            grouped.setdefault(prefix, []).append(file_info)

    sections = [
        Section(prefix, prefix.upper(), sorted(grouped[prefix], key=lambda f: f['key']))
        for prefix in sorted(grouped)
    ]

    if unsorted:
        sections.append(Section(UNSORTED, 'Unsorted', sorted(unsorted, key=lambda f: f['key'])))

    return sections
