"""
Arity encoding shared by every knowledge source.

  arity == -1   any number of arguments, including zero
  arity >= 0    exactly `arity` arguments
  arity < -1    at least -(arity + 1) arguments
"""

import inspect
from typing import Iterable

ANY_ARITY = -1


def supports(arity: int, received: int) -> bool:
    """Does a method declared with `arity` accept `received` arguments?"""
    if arity == ANY_ARITY:
        return True
    if arity < ANY_ARITY:
        return received >= -(arity + 1)
    return received == arity


def minimum_arguments(arity: int) -> int:
    """Smallest argument count accepted under the encoding."""
    if arity >= 0:
        return arity
    return -(arity + 1)


def describe(arity: int) -> str:
    """Human-readable rendering of an encoded arity."""
    if arity == ANY_ARITY:
        return "any number of arguments"
    if arity < ANY_ARITY:
        return f"{minimum_arguments(arity)} or more arguments"
    return f"exactly {arity} argument{'s' if arity != 1 else ''}"


def arity_from_parameters(parameters: Iterable[inspect.Parameter]) -> int:
    """
    Encode a Python parameter list (receiver already removed) as an arity.

    Required keyword-only parameters are passed as one trailing hash of
    keyword pairs, so together they add a single required argument.
    Optional positionals, *args, optional keywords and **kwargs make the
    arity open-ended.
    """
    required = 0
    open_ended = False
    required_keywords = False
    optional_keywords = False

    for param in parameters:
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            if param.default is param.empty:
                required += 1
            else:
                open_ended = True
        elif param.kind == param.VAR_POSITIONAL:
            open_ended = True
        elif param.kind == param.KEYWORD_ONLY:
            if param.default is param.empty:
                required_keywords = True
            else:
                optional_keywords = True
        elif param.kind == param.VAR_KEYWORD:
            optional_keywords = True

    if required_keywords:
        required += 1
    elif optional_keywords:
        open_ended = True

    if open_ended:
        return -(required + 1)
    return required
