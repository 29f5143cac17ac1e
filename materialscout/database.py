import os
import time
from typing import Optional
from neo4j import GraphDatabase
from neo4j.exceptions import ServiceUnavailable, SessionExpired
from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), "..", ".env"))

# Graph schema (read-only from this service; written by the CRUD collaborator):
#   (:Material {id, name, category, chemical_formula})
#   (:Material)-[:HAS_PROPERTY]->(:MaterialProperty {name, value, position})
#   (:Material)-[:HAS_APPLICATION]->(:Application {name})
#   (:Material)-[:COMPLIES_WITH]->(:Regulation {name})
#   (:Material)-[:HAS_SUSTAINABILITY]->(:SustainabilityProfile {...scores})
#   (:Material)-[:HAS_SYNONYM]->(:Synonym {name})
#   (:Supplier {company_name, country})-[:SUPPLIES]->(:Material)
#   (:ExcludedTerm {term, category})

MATERIAL_FULLTEXT_INDEX = "material_fulltext"


def _lucene_wildcard(term: str) -> str:
    """Escape special Lucene characters and wrap the term for substring search."""
    safe_term = term
    for ch in ("\\", "+", "-", "&", "|", "!", "(", ")", "{", "}", "[", "]", "^", '"', "~", "*", "?", ":", "/"):
        safe_term = safe_term.replace(ch, f"\\{ch}")
    return f"*{safe_term}*"


class Neo4jConnection:
    def __init__(self):
        self.uri = os.getenv("NEO4J_URI")
        self.user = os.getenv("NEO4J_USER")
        self.password = os.getenv("NEO4J_PASSWORD")
        self.database = os.getenv("NEO4J_DATABASE", "neo4j")
        self.driver = None

    def connect(self):
        if not self.driver:
            self.driver = GraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
                max_connection_lifetime=3600,
                max_connection_pool_size=50,   # per-term and per-entity fan-out runs in parallel
                connection_acquisition_timeout=30,
                keep_alive=True,
            )
        return self.driver

    def warmup(self):
        """Pre-connect and warm up connection pool. Call on server start."""
        t = time.time()
        try:
            driver = self.connect()
            with driver.session(database=self.database) as session:
                session.run("RETURN 1").single()
            elapsed = time.time() - t
            print(f"✓ Neo4j connection warmed up in {elapsed:.2f}s")
        except Exception as e:
            print(f"⚠ Neo4j warmup failed: {e}")

    def reconnect(self):
        """Force reconnection by closing existing driver and creating new one."""
        if self.driver:
            try:
                self.driver.close()
            except Exception:
                pass
            self.driver = None
        return self.connect()

    def close(self):
        if self.driver:
            self.driver.close()
            self.driver = None

    def _execute_with_retry(self, query_func, max_retries=2):
        """Execute a query function with automatic retry on connection failure."""
        last_error = None
        for attempt in range(max_retries + 1):
            try:
                return query_func()
            except (ServiceUnavailable, SessionExpired) as e:
                last_error = e
                if attempt < max_retries:
                    # Connection is stale, reconnect and retry
                    self.reconnect()
                else:
                    raise
            except Exception as e:
                # Check if it's a connection-related error by message
                error_msg = str(e).lower()
                if "defunct" in error_msg or "connection" in error_msg:
                    last_error = e
                    if attempt < max_retries:
                        self.reconnect()
                    else:
                        raise
                else:
                    raise
        raise last_error

    def verify_connection(self):
        """Verify the connection and return database info"""
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("RETURN 1 AS test")
                return result.single()["test"] == 1
        return self._execute_with_retry(_query)

    def get_material_count(self) -> int:
        """Count stored Material nodes."""
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("MATCH (m:Material) RETURN count(m) AS count")
                return result.single()["count"]
        return self._execute_with_retry(_query)

    # ========================================
    # Material ID lookups (one per search strategy)
    # ========================================

    def search_material_ids_by_synonym(self, term: str) -> list[str]:
        """IDs of materials having a synonym that contains `term` (case-insensitive)."""
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material)-[:HAS_SYNONYM]->(s:Synonym)
                    WHERE toLower(s.name) CONTAINS toLower($term)
                    RETURN DISTINCT m.id AS id
                """, term=term)
                return [record["id"] for record in result]
        return self._execute_with_retry(_query)

    def search_material_ids(self, term: str, limit: int = 50) -> list[str]:
        """IDs of materials whose name or formula matches `term`.

        Fulltext hits come first, then a CONTAINS scan is unioned in: the
        default analyzer splits hyphenated names ("Ti-6Al-4V") into tokens
        that a single wildcard term never matches.
        """
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                ids: list[str] = []
                try:
                    result = session.run("""
                        CALL db.index.fulltext.queryNodes($index_name, $search_term)
                        YIELD node AS m, score
                        RETURN m.id AS id
                        ORDER BY score DESC
                        LIMIT $limit
                    """, index_name=MATERIAL_FULLTEXT_INDEX,
                        search_term=_lucene_wildcard(term), limit=limit)
                    ids = [record["id"] for record in result]
                except Exception as e:
                    # Connection errors must reach the retry wrapper
                    if isinstance(e, (ServiceUnavailable, SessionExpired)):
                        raise
                    # Missing fulltext index: the scan below still runs

                result = session.run("""
                    MATCH (m:Material)
                    WHERE toLower(m.name) CONTAINS toLower($term)
                       OR toLower(coalesce(m.chemical_formula, '')) CONTAINS toLower($term)
                    RETURN m.id AS id
                    LIMIT $limit
                """, term=term, limit=limit)
                for record in result:
                    if record["id"] not in ids:
                        ids.append(record["id"])
                return ids[:limit]
        return self._execute_with_retry(_query)

    def search_material_ids_by_category(self, term: str) -> list[str]:
        """IDs of materials whose category contains `term`."""
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material)
                    WHERE toLower(coalesce(m.category, '')) CONTAINS toLower($term)
                    RETURN m.id AS id
                """, term=term)
                return [record["id"] for record in result]
        return self._execute_with_retry(_query)

    def get_materials_by_ids(self, material_ids: list[str]) -> list[dict]:
        """Base material rows for a set of IDs."""
        if not material_ids:
            return []

        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material)
                    WHERE m.id IN $ids
                    RETURN m.id AS id, m.name AS name,
                           coalesce(m.category, '') AS category,
                           m.chemical_formula AS chemical_formula
                """, ids=list(material_ids))
                return [dict(record) for record in result]
        return self._execute_with_retry(_query)

    # ========================================
    # Related records (one query per relation, fanned out by the retriever)
    # ========================================

    def get_material_properties(self, material_id: str) -> list[dict]:
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material {id: $id})-[:HAS_PROPERTY]->(p:MaterialProperty)
                    RETURN p.name AS property_name, toString(p.value) AS property_value
                    ORDER BY coalesce(p.position, 0), p.name
                """, id=material_id)
                return [dict(record) for record in result]
        return self._execute_with_retry(_query)

    def get_material_applications(self, material_id: str) -> list[dict]:
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material {id: $id})-[:HAS_APPLICATION]->(a:Application)
                    RETURN a.name AS application
                """, id=material_id)
                return [dict(record) for record in result]
        return self._execute_with_retry(_query)

    def get_material_regulations(self, material_id: str) -> list[dict]:
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material {id: $id})-[:COMPLIES_WITH]->(r:Regulation)
                    RETURN r.name AS regulation
                """, id=material_id)
                return [dict(record) for record in result]
        return self._execute_with_retry(_query)

    def get_material_sustainability(self, material_id: str) -> Optional[dict]:
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material {id: $id})-[:HAS_SUSTAINABILITY]->(s:SustainabilityProfile)
                    RETURN s.overall_score AS overall_score,
                           s.renewable_score AS renewable_score,
                           s.carbon_footprint_score AS carbon_footprint_score,
                           s.biodegradability_score AS biodegradability_score,
                           s.toxicity_score AS toxicity_score,
                           s.calculation_method AS calculation_method
                    LIMIT 1
                """, id=material_id)
                record = result.single()
                return dict(record) if record else None
        return self._execute_with_retry(_query)

    def get_material_suppliers(self, material_id: str) -> list[dict]:
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (s:Supplier)-[:SUPPLIES]->(m:Material {id: $id})
                    RETURN s.company_name AS company_name, coalesce(s.country, '') AS country
                """, id=material_id)
                return [dict(record) for record in result]
        return self._execute_with_retry(_query)

    def get_material_synonyms(self, material_id: str) -> list[str]:
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("""
                    MATCH (m:Material {id: $id})-[:HAS_SYNONYM]->(s:Synonym)
                    RETURN s.name AS synonym
                """, id=material_id)
                return [record["synonym"] for record in result]
        return self._execute_with_retry(_query)

    # ========================================
    # Excluded search terms
    # ========================================

    def get_excluded_terms(self) -> list[str]:
        """All category/use-case terms that must not be treated as material names."""
        def _query():
            driver = self.connect()
            with driver.session(database=self.database) as session:
                result = session.run("MATCH (t:ExcludedTerm) RETURN t.term AS term")
                return [record["term"] for record in result if record["term"]]
        return self._execute_with_retry(_query)


db = Neo4jConnection()
