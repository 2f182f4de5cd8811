"""
Arrange a research's flat comment list into reply threads.

Pure function over already-loaded rows; no database access.
"""
from __future__ import annotations

import uuid
from typing import Dict, List, Sequence

from app.models.comment import Comment
from app.schemas.comment import CommentRead


def to_read(comment: Comment) -> CommentRead:
    read = CommentRead.model_validate(comment)
    if comment.is_deleted:
        read.content = None
    return read


def build_threads(comments: Sequence[Comment]) -> List[CommentRead]:
    """
    Nest replies under their parents, keeping input order at every level.

    Deleted comments stay in place with their content withheld so their
    replies remain reachable. A reply whose parent is not in the list is
    promoted to the top level.
    """
    nodes: Dict[uuid.UUID, CommentRead] = {c.id: to_read(c) for c in comments}
    roots: List[CommentRead] = []
    for comment in comments:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots
