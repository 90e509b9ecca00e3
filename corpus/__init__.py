"""Paper corpus storage: papers, paginated full text and abstract embeddings."""

from .errors import PaperscopeError, RetrievalError, SearchValidationError
from .models import FullPaper, NewPage, NewPaper, Paper, PaperAbstract, PaperAbstractEmbedding, PaperPage
from .repositories import CorpusStore
from .vectors import EMBEDDING_DIM

__all__ = [
    "EMBEDDING_DIM",
    "CorpusStore",
    "FullPaper",
    "NewPage",
    "NewPaper",
    "Paper",
    "PaperAbstract",
    "PaperAbstractEmbedding",
    "PaperPage",
    "PaperscopeError",
    "RetrievalError",
    "SearchValidationError",
]
