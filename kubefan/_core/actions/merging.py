from typing import Dict, Iterable, List

from kubefan._cogs.structs import bodies


def merge(per_type_results: Iterable[Iterable[bodies.RawBody]]) -> List[bodies.RawBody]:
    """
    Collapse the objects seen via several resource types into unique ones.

    The same object can be served by several API groups or versions at once
    (e.g. ingresses in ``extensions`` & ``networking.k8s.io``). They are
    identified by their uids (or by their full coordinates if there are no uids).

    The last one seen wins, i.e. the one from the resource type with the highest
    index if the per-type results are given in the order of discovery.
    The order of the objects is the order of their first appearance.
    """
    merged: Dict[bodies.Identity, bodies.RawBody] = {}
    for objs in per_type_results:
        for obj in objs:
            merged[bodies.get_identity(obj)] = obj
    return list(merged.values())
