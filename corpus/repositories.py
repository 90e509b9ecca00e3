"""
Repository Layer - the corpus store consumed by the search services.

`CorpusStore` is the only component that knows about SQLite, FTS5 or the
vector index. Services receive a store handle explicitly; there is no
module-level "current connection".

Usage examples:
    from corpus.repositories import CorpusStore

    store = CorpusStore("data/corpus.db")
    paper = store.get_paper_by_universal_id("2301.00001")
    pages = store.fetch_matching_pages([paper.id], '"transformer"')

    with store.session() as session:
        session.set_local("ann.ef_search", 1000)
        hits = store.nearest_embeddings(session, query_vector, k=10)
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from datetime import date, datetime
from threading import Lock
from typing import Iterable, Iterator, Optional, Sequence

import numpy as np
from loguru import logger

from config import settings

from .db import CORPUS_DB_FILE, StoreSession, execute_with_retry, init_schema, open_connection, transaction
from .errors import RetrievalError
from .models import (
    FullPaper,
    NewPaper,
    Paper,
    PaperAbstract,
    PaperAbstractEmbedding,
    PaperPage,
    from_db_timestamp,
    to_db_timestamp,
)
from .tokens import build_search_vector
from .vectors import IvfIndex, from_blob, to_blob, validate_embedding

# SQLite caps bound variables per statement; id lists are chunked below this.
_IN_CHUNK = 500

_PAPER_COLUMNS = "id, universal_id, title, abstract, publication_date, votes"


def _row_to_paper(row: sqlite3.Row) -> Paper:
    return Paper(
        id=row["id"],
        universal_id=row["universal_id"],
        title=row["title"],
        abstract=row["abstract"],
        publication_date=from_db_timestamp(row["publication_date"]),
        votes=row["votes"],
    )


def _row_to_page(row: sqlite3.Row) -> PaperPage:
    return PaperPage(id=row["id"], paper_id=row["paper_id"], page_number=row["page_number"], text=row["text"])


def _chunks(items: Sequence, size: int = _IN_CHUNK) -> Iterator[Sequence]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class CorpusStore:
    """Read/write access to papers, pages and abstract embeddings."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        *,
        default_ef_search: Optional[int] = None,
        ann_nlist: Optional[int] = None,
        ann_min_train_size: Optional[int] = None,
    ):
        """
        Args:
            db_path: SQLite file (default: settings.db.path)
            default_ef_search: recall width when a session sets no override
            ann_nlist: IVF list count (0 = auto)
            ann_min_train_size: below this many vectors the index is a flat scan
        """
        self.db_path = str(db_path or CORPUS_DB_FILE)
        self.default_ef_search = default_ef_search or settings.ann.ef_search
        self.ann_nlist = settings.ann.nlist if ann_nlist is None else ann_nlist
        self.ann_min_train_size = ann_min_train_size or settings.ann.min_train_size

        self._ann_lock = Lock()
        self._ann_index: IvfIndex | None = None
        self._ann_generation: tuple[int, int] | None = None

        with self._connection() as conn:
            init_schema(conn)

    # ------------------------------------------------------------------
    # Connection scoping

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = open_connection(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def session(self) -> Iterator[StoreSession]:
        """One connection, one read transaction, session-local settings.

        The session's settings are cleared when the block exits, whether it
        completes or raises.
        """
        with self._connection() as conn:
            sess = StoreSession(conn)
            try:
                with transaction(conn, mode="DEFERRED"):
                    yield sess
            finally:
                sess.clear_local()

    # ------------------------------------------------------------------
    # Paper lookups

    def get_paper_by_universal_id(self, universal_id: str) -> Optional[Paper]:
        with self._connection() as conn:
            row = execute_with_retry(
                conn,
                f"SELECT {_PAPER_COLUMNS} FROM papers WHERE universal_id = ? LIMIT 1",
                (universal_id,),
            ).fetchone()
        return _row_to_paper(row) if row else None

    def get_papers_by_universal_ids(self, universal_ids: Iterable[str]) -> list[Paper]:
        ids = list(dict.fromkeys(universal_ids))
        if not ids:
            return []
        out: list[Paper] = []
        with self._connection() as conn:
            for chunk in _chunks(ids):
                placeholders = ",".join("?" * len(chunk))
                cursor = execute_with_retry(
                    conn,
                    f"SELECT {_PAPER_COLUMNS} FROM papers WHERE universal_id IN ({placeholders}) ORDER BY id",
                    tuple(chunk),
                )
                out.extend(_row_to_paper(r) for r in cursor)
        return out

    def get_paper_abstract(self, universal_id: str) -> Optional[PaperAbstract]:
        with self._connection() as conn:
            row = execute_with_retry(
                conn,
                "SELECT id, universal_id, title, abstract FROM papers WHERE universal_id = ? LIMIT 1",
                (universal_id,),
            ).fetchone()
        if row is None:
            return None
        return PaperAbstract(id=row["id"], universal_id=row["universal_id"], title=row["title"], abstract=row["abstract"])

    def get_page(self, universal_id: str, page_number: int) -> Optional[PaperPage]:
        with self._connection() as conn:
            row = execute_with_retry(
                conn,
                """
                SELECT pp.id, pp.paper_id, pp.page_number, pp.text
                FROM paper_pages pp JOIN papers p ON pp.paper_id = p.id
                WHERE p.universal_id = ? AND pp.page_number = ?
                LIMIT 1
                """,
                (universal_id, page_number),
            ).fetchone()
        return _row_to_page(row) if row else None

    def get_page_count(self, universal_id: str) -> int:
        with self._connection() as conn:
            row = execute_with_retry(
                conn,
                """
                SELECT COUNT(*) FROM paper_pages pp JOIN papers p ON pp.paper_id = p.id
                WHERE p.universal_id = ?
                """,
                (universal_id,),
            ).fetchone()
        return int(row[0]) if row else 0

    def get_full_paper(self, universal_id: str) -> Optional[FullPaper]:
        with self._connection() as conn:
            paper = execute_with_retry(
                conn,
                "SELECT id, universal_id, title FROM papers WHERE universal_id = ? LIMIT 1",
                (universal_id,),
            ).fetchone()
            if paper is None:
                return None
            cursor = execute_with_retry(
                conn,
                "SELECT id, paper_id, page_number, text FROM paper_pages WHERE paper_id = ? ORDER BY page_number",
                (paper["id"],),
            )
            pages = [_row_to_page(r) for r in cursor]
        return FullPaper(universal_id=paper["universal_id"], title=paper["title"], pages=pages)

    # ------------------------------------------------------------------
    # Search primitives

    def find_matching_paper_ids(self, match_query: str, limit: Optional[int] = None) -> list[int]:
        """Distinct paper ids with at least one page matching `match_query`.

        Answered from the FTS index alone: no join to papers and no ordering.
        """
        sql = """
            SELECT DISTINCT pp.paper_id
            FROM paper_pages_fts JOIN paper_pages pp ON pp.id = paper_pages_fts.rowid
            WHERE paper_pages_fts MATCH ?
        """
        params: tuple = (match_query,)
        if limit is not None:
            sql += " LIMIT ?"
            params += (int(limit),)
        with self._connection() as conn:
            return [row[0] for row in execute_with_retry(conn, sql, params)]

    def find_papers(
        self,
        paper_ids: Sequence[int],
        min_publication_date: Optional[datetime | date] = None,
        limit: Optional[int] = None,
        session: Optional[StoreSession] = None,
    ) -> list[Paper]:
        """Papers among `paper_ids`, optionally published on/after a date,
        ordered by votes descending (id ascending on ties).

        Runs inside `session` when one is given, otherwise in its own
        transaction.
        """
        ids = list(dict.fromkeys(paper_ids))
        if not ids:
            return []
        if session is not None:
            return self._find_papers(session.conn, ids, min_publication_date, limit)
        with self._connection() as conn:
            with transaction(conn):
                return self._find_papers(conn, ids, min_publication_date, limit)

    @staticmethod
    def _find_papers(
        conn: sqlite3.Connection,
        ids: list[int],
        min_publication_date: Optional[datetime | date],
        limit: Optional[int],
    ) -> list[Paper]:
        # A temp table keeps the id set bound parameters of any size while
        # filter, sort and limit stay in one statement.
        conn.execute("CREATE TEMP TABLE IF NOT EXISTS candidate_ids (id INTEGER PRIMARY KEY)")
        conn.execute("DELETE FROM temp.candidate_ids")
        conn.executemany("INSERT OR IGNORE INTO temp.candidate_ids (id) VALUES (?)", ((i,) for i in ids))
        sql = f"""
            SELECT {_PAPER_COLUMNS} FROM papers
            WHERE id IN (SELECT id FROM temp.candidate_ids)
        """
        params: tuple = ()
        if min_publication_date is not None:
            sql += " AND publication_date >= ?"
            params += (to_db_timestamp(min_publication_date),)
        sql += " ORDER BY votes DESC, id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params += (int(limit),)
        rows = execute_with_retry(conn, sql, params).fetchall()
        return [_row_to_paper(r) for r in rows]

    def fetch_matching_pages(self, paper_ids: Sequence[int], match_query: str) -> list[PaperPage]:
        """Pages of `paper_ids` matching `match_query`, by paper then page number."""
        ids = list(dict.fromkeys(paper_ids))
        if not ids:
            return []
        pages: list[PaperPage] = []
        with self._connection() as conn:
            for chunk in _chunks(ids):
                placeholders = ",".join("?" * len(chunk))
                cursor = execute_with_retry(
                    conn,
                    f"""
                    SELECT pp.id, pp.paper_id, pp.page_number, pp.text
                    FROM paper_pages_fts JOIN paper_pages pp ON pp.id = paper_pages_fts.rowid
                    WHERE paper_pages_fts MATCH ? AND pp.paper_id IN ({placeholders})
                    ORDER BY pp.paper_id, pp.page_number
                    """,
                    (match_query, *chunk),
                )
                pages.extend(_row_to_page(r) for r in cursor)
        return pages

    def nearest_embeddings(self, session: StoreSession, vector: Sequence[float] | np.ndarray, k: int) -> list[tuple[int, float]]:
        """The `k` papers whose abstract embeddings are nearest to `vector`.

        Returns (paper_id, cosine distance) pairs ordered by distance
        ascending. Recall is governed by the session's `ann.ef_search`.
        """
        query = validate_embedding(vector, stage="ann")
        ef_search = int(session.get_local("ann.ef_search", self.default_ef_search))
        index = self._get_ann_index(session)
        t0 = time.time()
        hits = index.search(query, k, ef_search)
        logger.trace(f"ANN search: k={k} ef_search={ef_search} n={len(index)} in {time.time() - t0:.3f}s")
        return hits

    def _get_ann_index(self, session: StoreSession) -> IvfIndex:
        row = session.execute("SELECT COUNT(*), COALESCE(MAX(id), 0) FROM paper_abstract_embeddings").fetchone()
        generation = (int(row[0]), int(row[1]))
        with self._ann_lock:
            if self._ann_index is not None and self._ann_generation == generation:
                return self._ann_index

            t0 = time.time()
            logger.trace("[BLOCKING] building ANN index from float16 embeddings...")
            ids: list[int] = []
            vecs: list[np.ndarray] = []
            for r in session.execute("SELECT paper_id, embedding_half FROM paper_abstract_embeddings ORDER BY paper_id"):
                ids.append(r[0])
                vecs.append(from_blob(r[1], np.float16))
            matrix = np.vstack(vecs) if vecs else np.zeros((0, 1), dtype=np.float16)
            try:
                index = IvfIndex(
                    np.asarray(ids, dtype=np.int64),
                    matrix,
                    nlist=self.ann_nlist,
                    min_train_size=self.ann_min_train_size,
                )
            except (ValueError, MemoryError) as exc:
                logger.error(f"ANN index build failed over {len(ids)} vectors: {exc}")
                raise RetrievalError(f"ANN index build failed: {exc}", stage="ann") from exc
            self._ann_index = index
            self._ann_generation = generation
            logger.debug(f"ANN index ready: {len(index)} vectors, flat={index.is_flat}, {time.time() - t0:.2f}s")
            return index

    # ------------------------------------------------------------------
    # Writes

    def create_papers_with_pages(self, papers: Sequence[NewPaper]) -> list[Paper]:
        """Insert papers and their pages in one transaction.

        Raises sqlite3.IntegrityError (and writes nothing) on a duplicate
        universal id or duplicate page number.
        """
        if not papers:
            return []
        created: list[Paper] = []
        with self._connection() as conn:
            with transaction(conn, mode="IMMEDIATE"):
                for p in papers:
                    cursor = conn.execute(
                        """
                        INSERT INTO papers (universal_id, title, abstract, publication_date, votes)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (p.universal_id, p.title, p.abstract, to_db_timestamp(p.publication_date), int(p.votes)),
                    )
                    paper_id = cursor.lastrowid
                    conn.executemany(
                        """
                        INSERT INTO paper_pages (paper_id, page_number, text, search_vector)
                        VALUES (?, ?, ?, ?)
                        """,
                        [(paper_id, pg.page_number, pg.text, build_search_vector(pg.text)) for pg in p.pages],
                    )
                    row = conn.execute(f"SELECT {_PAPER_COLUMNS} FROM papers WHERE id = ?", (paper_id,)).fetchone()
                    created.append(_row_to_paper(row))
        logger.debug(f"Created {len(created)} papers with {sum(len(p.pages) for p in papers)} pages")
        return created

    def update_page_text(self, page_id: int, text: str) -> bool:
        """Replace a page's text; its search vector is recomputed with it."""
        with self._connection() as conn:
            with transaction(conn, mode="IMMEDIATE"):
                cursor = conn.execute(
                    "UPDATE paper_pages SET text = ?, search_vector = ? WHERE id = ?",
                    (text, build_search_vector(text), page_id),
                )
                return cursor.rowcount > 0

    def insert_paper_abstract_embedding(self, paper_id: int, embedding: Sequence[float] | np.ndarray) -> bool:
        """Store a paper's abstract embedding and its float16 copy.

        Returns False when the paper already has an embedding (ignored).
        """
        vec = validate_embedding(embedding, stage="insert_embedding")
        with self._connection() as conn:
            with transaction(conn, mode="IMMEDIATE"):
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO paper_abstract_embeddings (paper_id, embedding, embedding_half)
                    VALUES (?, ?, ?)
                    """,
                    (paper_id, to_blob(vec, np.float32), to_blob(vec, np.float16)),
                )
                return cursor.rowcount > 0

    def get_abstract_embedding(self, paper_id: int) -> Optional[PaperAbstractEmbedding]:
        with self._connection() as conn:
            row = execute_with_retry(
                conn,
                "SELECT id, paper_id, embedding, embedding_half FROM paper_abstract_embeddings WHERE paper_id = ?",
                (paper_id,),
            ).fetchone()
        if row is None:
            return None
        return PaperAbstractEmbedding(
            id=row["id"],
            paper_id=row["paper_id"],
            embedding=from_blob(row["embedding"], np.float32),
            embedding_half=from_blob(row["embedding_half"], np.float16),
        )

    def get_paper_ids_without_embedding(self, limit: Optional[int] = None) -> list[int]:
        sql = """
            SELECT p.id FROM papers p
            LEFT JOIN paper_abstract_embeddings e ON e.paper_id = p.id
            WHERE e.id IS NULL ORDER BY p.id
        """
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (int(limit),)
        with self._connection() as conn:
            return [row[0] for row in execute_with_retry(conn, sql, params)]

    def delete_paper_by_universal_id(self, universal_id: str) -> Optional[Paper]:
        """Delete a paper; its pages and embedding go with it."""
        with self._connection() as conn:
            with transaction(conn, mode="IMMEDIATE"):
                row = conn.execute(
                    f"SELECT {_PAPER_COLUMNS} FROM papers WHERE universal_id = ?", (universal_id,)
                ).fetchone()
                if row is None:
                    return None
                conn.execute("DELETE FROM papers WHERE id = ?", (row["id"],))
        return _row_to_paper(row)
