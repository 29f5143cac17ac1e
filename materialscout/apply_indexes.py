#!/usr/bin/env python3
"""Create the Neo4j indexes the material search relies on.

Run once per database: python -m materialscout.apply_indexes
"""

from materialscout.database import MATERIAL_FULLTEXT_INDEX, db

# Wildcard name/formula search (Neo4jConnection.search_material_ids)
FULLTEXT_INDEXES = [
    (MATERIAL_FULLTEXT_INDEX, 'Material', ['name', 'chemical_formula']),
]

# Related-record lookups and base rows match on Material.id
BTREE_INDEXES = [
    ('material_id', 'Material', 'id'),
    ('material_name', 'Material', 'name'),
    ('material_category', 'Material', 'category'),
    ('synonym_name', 'Synonym', 'name'),
    ('excluded_term', 'ExcludedTerm', 'term'),
]


def apply_indexes(connection=db) -> list[str]:
    """Apply all fulltext and b-tree indexes. Returns the names that failed."""
    failed = []
    driver = connection.connect()

    with driver.session(database=connection.database) as session:
        print("Applying fulltext indexes...")
        for idx_name, label, properties in FULLTEXT_INDEXES:
            props_str = ', '.join([f'n.{p}' for p in properties])
            query = f"""
                CREATE FULLTEXT INDEX {idx_name} IF NOT EXISTS
                FOR (n:{label}) ON EACH [{props_str}]
            """
            try:
                session.run(query)
                print(f"  ✓ {idx_name} on {label}[{', '.join(properties)}]")
            except Exception as e:
                print(f"  ✗ {idx_name}: {e}")
                failed.append(idx_name)

        print("\nApplying b-tree indexes...")
        for idx_name, label, prop in BTREE_INDEXES:
            query = f"CREATE INDEX {idx_name} IF NOT EXISTS FOR (n:{label}) ON (n.{prop})"
            try:
                session.run(query)
                print(f"  ✓ {idx_name} on {label}.{prop}")
            except Exception as e:
                print(f"  ✗ {idx_name}: {e}")
                failed.append(idx_name)

    return failed


if __name__ == "__main__":
    failures = apply_indexes()
    db.close()
    print("\nDone!" if not failures else f"\nFinished with failures: {', '.join(failures)}")
