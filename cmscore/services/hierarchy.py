"""
Materialized-path helpers for the content tree.

A node stores its ancestry twice: ``ancestors`` is the ordered list of ancestor
ids (root first) and ``parentPath`` is the same list joined as ``,A,B,``. Root
nodes have ``parentPath = None`` and no ancestors. Nothing in this module touches
the database.
"""
import re
from typing import Any, Dict, List, Optional, Sequence

from cmscore.core.exceptions import ValidationException

PATH_SEPARATOR = ","


def build_parent_path(ancestors: Sequence[Any]) -> Optional[str]:
    """``[A, B]`` -> ``",A,B,"``; an empty chain is a root (``None``)."""
    if not ancestors:
        return None
    return PATH_SEPARATOR + PATH_SEPARATOR.join(str(a) for a in ancestors) + PATH_SEPARATOR


def split_parent_path(parent_path: Optional[str]) -> List[str]:
    """Ordered ancestor ids from a parent path, root first."""
    if not parent_path:
        return []
    return [part for part in parent_path.split(PATH_SEPARATOR) if part.strip()]


def hierarchy_under(parent: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Hierarchy fields of a node placed directly under ``parent`` (or at the root)."""
    if parent is None:
        return {"parentId": None, "parentPath": None, "ancestors": []}

    ancestors = [str(a) for a in parent.get("ancestors") or []]
    ancestors.append(str(parent["_id"]))
    return {
        "parentId": parent["_id"],
        "parentPath": f"{parent.get('parentPath') or PATH_SEPARATOR}{parent['_id']}{PATH_SEPARATOR}",
        "ancestors": ancestors,
    }


def subtree_prefix(node: Dict[str, Any]) -> str:
    """The ``parentPath`` prefix shared by every descendant of ``node``."""
    return f"{node.get('parentPath') or PATH_SEPARATOR}{node['_id']}{PATH_SEPARATOR}"


def subtree_filter(node: Dict[str, Any]) -> Dict[str, Any]:
    """MongoDB condition on ``parentPath`` matching all descendants of ``node``."""
    return {"$regex": "^" + re.escape(subtree_prefix(node))}


def is_in_subtree(node: Dict[str, Any], candidate: Dict[str, Any]) -> bool:
    """True when ``candidate`` is ``node`` itself or one of its descendants."""
    if str(candidate["_id"]) == str(node["_id"]):
        return True
    return str(node["_id"]) in [str(a) for a in candidate.get("ancestors") or []]


def rebase_descendant(descendant: Dict[str, Any], moved: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recompute the hierarchy of ``descendant`` after ``moved`` was relocated.

    ``moved`` must already carry its new ``ancestors``. The part of the chain below
    ``moved`` is kept and re-attached under the new ancestry; ``parentId`` does not
    change since the direct parent moves along with the subtree.
    """
    moved_id = str(moved["_id"])
    ancestors = [str(a) for a in descendant.get("ancestors") or []]
    try:
        index = ancestors.index(moved_id)
    except ValueError:
        raise ValidationException(
            "ancestors",
            f"Content {descendant['_id']} is not a descendant of {moved_id}",
        )

    new_ancestors = [str(a) for a in moved.get("ancestors") or []]
    new_ancestors.append(moved_id)
    new_ancestors.extend(ancestors[index + 1:])
    return {
        "parentId": descendant.get("parentId"),
        "parentPath": build_parent_path(new_ancestors),
        "ancestors": new_ancestors,
    }
