"""Docstring inheritance utilities."""

__all__ = ["inherit_docstring", "attribute_block"]

# Header of the numpy-style attribute block
TAB = "    "
HEADER = f"Attributes\n{TAB}----------\n"


def attribute_block(cls):
    """Extracts the attribute lines of a numpy-style class docstring.

    Parameters
    ----------
    cls : object
        Class to fetch the attribute block from

    Returns
    -------
    str
        Attribute block, without its header
    """
    doc = cls.__doc__ or ""
    if HEADER not in doc:
        return ""

    # Keep everything until the next section underline, if there is one
    block = doc.split(HEADER)[-1].rstrip() + "\n"
    lines = block.split("\n")
    for i, line in enumerate(lines):
        if line.strip().startswith("----") and i > 0:
            lines = lines[: i - 1]
            break

    return "\n".join(lines).rstrip() + "\n"


def inherit_docstring(*parents):
    """Prepends the attribute block of parent class(es) to a class docstring.

    Only handles numpy-style docstrings.

    Parameters
    ----------
    *parents : List[object]
        Parent class(es) to inherit attributes from

    Returns
    -------
    callable
        Class decorator which updates the docstring
    """

    def inherit(obj):
        doc = obj.__doc__ or ""
        if HEADER not in doc:
            doc = doc.rstrip() + f"\n\n{TAB}{HEADER}"

        prestr = "".join(attribute_block(parent) for parent in parents)
        head, tail = doc.split(HEADER, 1)
        obj.__doc__ = head + HEADER + prestr + tail

        return obj

    return inherit
