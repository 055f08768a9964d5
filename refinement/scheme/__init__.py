from refinement.scheme.scheme import Scheme, SchemeEntry, SchemeEntryKind
from refinement.scheme.scheme_filter import SchemeFilter

__all__ = ["Scheme", "SchemeEntry", "SchemeEntryKind", "SchemeFilter"]
