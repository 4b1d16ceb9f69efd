"""Launch the phylo-explorer dashboard with a tree and metadata table."""

import sys

import phylo_explorer as pe

tree_path, metadata_path = sys.argv[1], sys.argv[2]
with open(tree_path, encoding="utf-8") as fh:
    newick = fh.read().strip()
records = pe.read_metadata_tsv(metadata_path)

print(f"Metadata records: {len(records)}")
print("Launching explorer...")

pe.explore(newick, records)
