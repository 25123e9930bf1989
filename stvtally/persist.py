'''Serialization of counters and count results to JSON-ready dictionaries.

Counter objects decorated with :func:`simple_serialization` get a
``to_dict()`` method that records their constructor parameters, so that
the exact counting setup can be stored next to the result and reconstructed
by :func:`from_dict` for a later recount.

Vote weights are exact fractions inside the engine. By default they are
rendered as floats, which is what result consumers expect; pass
``exact=True`` to keep them as typed fraction records instead.
'''

import collections.abc
import datetime
import importlib
import inspect
from fractions import Fraction
from typing import Any, Callable, Dict


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The resulting method records all object attributes named like the
    class's constructor parameters, so the decorated class must store its
    parameters under their own names in a form its constructor accepts.
    Fractions among them are recorded exactly.

    :param class_: The class to add the method to.
    '''
    param_names = [
        name for name, param
        in inspect.signature(class_.__init__).parameters.items()
        if name != 'self'
        and param.kind not in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
    ]

    def to_dict(self) -> Dict[str, Any]:
        out = {'class': scoped_name(type(self))}
        out.update(
            (name, serialize_value(getattr(self, name), exact=True))
            for name in param_names
        )
        return out

    class_.to_dict = to_dict
    return class_


def serialize_value(value: Any, exact: bool = False) -> Any:
    '''Convert a value to a structure of JSON-compatible types.

    :param value: The value to convert. Objects with a ``to_dict()`` method
        convert themselves; other candidate identifiers, such as UUIDs, are
        rendered by ``str()``, in mapping keys too.
    :param exact: Record fractions as typed records instead of floats.
    :raises ValueError: For callables that cannot be imported back by their
        name, such as lambdas and nested functions.
    '''
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif value is None or isinstance(value, (str, int, float)):
        return value
    elif isinstance(value, Fraction):
        return fraction_to_json(value) if exact else float(value)
    elif isinstance(value, datetime.datetime):
        return value.isoformat()
    elif hasattr(value, 'keys') and hasattr(value, 'items'):
        return {
            serialize_key(key): serialize_value(item, exact=exact)
            for key, item in value.items()
        }
    elif hasattr(value, '__iter__'):
        return [serialize_value(item, exact=exact) for item in value]
    elif callable(value):
        name = scoped_name(value)
        if not is_scoped_identifier(name):
            raise ValueError(f'cannot serialize {value!r}: only module-level'
                             ' callables can be restored by name')
        return {'callable': name}
    elif is_identifier(value):
        return str(value)
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def serialize_key(key: Any) -> str:
    # candidate IDs are usually strings already
    if isinstance(key, str):
        return key
    elif isinstance(key, (int, float)) or is_identifier(key):
        return str(key)
    else:
        raise ValueError(f'cannot serialize {key!r} as a mapping key')


def is_identifier(value: Any) -> bool:
    '''Tell whether the value can identify a candidate.

    Mirrors :class:`stvtally.candidate.Candidate`: any hashable object that
    is not a set or a tuple.
    '''
    return (
        isinstance(value, collections.abc.Hashable)
        and not isinstance(value, (collections.abc.Set, tuple))
    )


def restore_value(value: Any) -> Any:
    '''Rebuild a value converted by :func:`serialize_value`.

    Typed records, class records and callable references are turned back
    into objects; any other structure is rebuilt as is.
    '''
    if isinstance(value, list):
        return [restore_value(item) for item in value]
    elif not isinstance(value, dict):
        return value
    elif value.get('type') in TYPED_RECORDS:
        return TYPED_RECORDS[value['type']](*value['arguments'])
    elif is_scoped_identifier(value.get('class')):
        params = {
            key: restore_value(item)
            for key, item in value.items() if key != 'class'
        }
        return resolve(value['class'])(**params)
    elif is_scoped_identifier(value.get('callable')):
        return resolve(value['callable'])
    else:
        return {key: restore_value(item) for key, item in value.items()}


def resolve(identifier: str) -> Any:
    '''Import the object named by a dotted module path.'''
    module_name, _, name = identifier.rpartition('.')
    if not module_name:
        raise ValueError(f'not a module-scoped name: {identifier!r}')
    return getattr(importlib.import_module(module_name), name)


def from_dict(value: Dict[str, Any]) -> Any:
    '''Reconstruct a counter or ballot object from a JSON-like dictionary.

    :param value: A dictionary created by :func:`to_dict`.
    '''
    if not isinstance(value, dict):
        raise ValueError('invalid stvtally object def: dict expected,'
                         f' got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid stvtally object def: must have a class key')
    elif not is_scoped_identifier(value['class']):
        raise ValueError(f'invalid stvtally class def: {value["class"]}')
    return restore_value(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    '''Serialize a counter or result object to a JSON-ready dictionary.

    :param obj: An object providing a `to_dict()` method, such as a counter
        decorated by :func:`simple_serialization` or a count result.
    '''
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and '.' in value
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_name(obj: Any) -> str:
    return f'{obj.__module__}.{obj.__qualname__}'


def fraction_to_json(f: Fraction) -> Dict[str, Any]:
    return {'type': 'Fraction', 'arguments': [f.numerator, f.denominator]}


TYPED_RECORDS: Dict[str, Callable] = {
    'Fraction': Fraction,
}
