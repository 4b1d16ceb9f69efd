"""Display utilities for prettifying metadata field names."""

import re

_ACRONYMS = {
    "id", "dna", "rna", "gisaid", "ncbi", "sra", "who", "hiv", "usa",
}

# Split camelCase / PascalCase boundaries, keeping runs of capitals together
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def prettify_name(name: str) -> str:
    """Convert snake_case or camelCase field names to Title Case.

    Examples::

        prettify_name("collection_date")   # -> "Collection Date"
        prettify_name("accessionVersion")  # -> "Accession Version"
        prettify_name("sample_id")         # -> "Sample ID"
        prettify_name("SampleID")          # -> "Sample ID"
    """
    words = _CAMEL_BOUNDARY.sub(" ", name.replace("_", " ")).split()
    return " ".join(
        w.upper() if w.lower() in _ACRONYMS else w[:1].upper() + w[1:]
        for w in words
    )
