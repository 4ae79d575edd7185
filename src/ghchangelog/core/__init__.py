"""Release aggregation and issue classification."""

from ghchangelog.core.aggregator import NoReleasesError, ReleaseAggregator
from ghchangelog.core.cancellation import CancelToken, OperationCancelledError
from ghchangelog.core.collector import IssueCollector, MergePolicy
from ghchangelog.core.labels import LabelAlias, LabelClassifier, LabelGroup, LabelMapping
from ghchangelog.core.merge import MergeVerifier
from ghchangelog.core.models import (
    Category,
    Event,
    Issue,
    IssuePool,
    MalformedResponseError,
    Release,
)

__all__ = [
    "CancelToken",
    "Category",
    "Event",
    "Issue",
    "IssueCollector",
    "IssuePool",
    "LabelAlias",
    "LabelClassifier",
    "LabelGroup",
    "LabelMapping",
    "MalformedResponseError",
    "MergePolicy",
    "MergeVerifier",
    "NoReleasesError",
    "OperationCancelledError",
    "Release",
    "ReleaseAggregator",
]
