"""
Template locals for a single document.
"""


def resolve_locals(result, document_key, base_locals=None, front_matter=None):
    """
    Merge the locals a template sees when rendering one document.

    Precedence, lowest first: ``base_locals``, the document's collection
    record from ``result``, then the document's own front matter. The merge is
    shallow and ``base_locals`` is left untouched. ``front_matter`` overrides
    the front matter recorded during assembly, which is how documents outside
    any collection get theirs in.
    """
    merged = dict(base_locals or {})

    record = result.index.get(document_key) if result is not None else None
    if record is not None:
        merged.update(record)

    if front_matter is None and result is not None:
        front_matter = result.front_matter.get(document_key)
    if front_matter:
        merged.update(front_matter)

    return merged
