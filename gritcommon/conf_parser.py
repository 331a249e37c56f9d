#!/usr/bin/env python3

# GRIT - submission intake and verification
# Copyright © 2026 The GRIT development team
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Load TOML configuration files into (nested) dataclasses.

"""

import dataclasses
import logging
import re
import sys
import tomllib
import types
import typing


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """A required setting is missing or has an invalid value."""

    pass


class ConfigTypeError(ConfigError):
    def __init__(self, path: str, expected: str, got: object):
        super().__init__(
            f"Expected {path} to be {expected}, got {type(got).__name__}")


_T = typing.TypeVar("_T")


def parse_config(
    config_file_path: str, config_class: type[_T], enoent_help: str = ""
) -> _T:
    """Load a TOML config file into config_class, or quit trying.

    config_class must be a dataclass whose fields are either TOML basic
    types (str, int, float, bool), other dataclasses following the same
    rules (TOML tables), list[T], tuple[T, ...], dict[str, T], or an
    optional T | None of any of these.

    A trailing "_" in a field name is dropped when looking up the TOML
    key, so that keys like "global" can be represented.

    config_file_path: path to the TOML file.
    config_class: dataclass to load the configuration into.
    enoent_help: extra hint logged when the file does not exist.

    """
    try:
        with open(config_file_path, "rb") as f:
            data = tomllib.load(f)
        return parse_config_obj(data, config_class, "")
    except FileNotFoundError:
        logger.critical("Cannot find configuration file %s%s",
                        config_file_path, enoent_help)
        sys.exit(1)
    except (ConfigError, tomllib.TOMLDecodeError) as error:
        # No stack trace for the common user mistakes.
        logger.critical("Cannot load configuration file %s: %s",
                        config_file_path, error)
        sys.exit(1)
    except Exception:
        logger.critical("Cannot load configuration file %s",
                        config_file_path, exc_info=True)
        sys.exit(1)


def format_key(key: str) -> str:
    if re.fullmatch(r"[A-Za-z0-9_-]+", key):
        return key
    # Close enough to a quoted TOML key for error messages.
    return repr(key)


def join_path(path: str, new_part: str) -> str:
    return path + "." + new_part if path != "" else new_part


def _parse_dataclass(data: object, obj_class: type[_T], path: str) -> _T:
    if not isinstance(data, dict):
        raise ConfigTypeError(path, "a table", data)
    data = dict(data)
    kw_args = {}
    for field in dataclasses.fields(obj_class):
        if not field.init:
            continue
        config_name = field.name.removesuffix("_")
        field_path = join_path(path, format_key(config_name))
        is_required = field.default is dataclasses.MISSING \
            and field.default_factory is dataclasses.MISSING
        if config_name not in data:
            if is_required:
                raise ConfigError(f"Key {field_path} is required")
            continue
        kw_args[field.name] = parse_config_obj(
            data.pop(config_name), typing.cast(type, field.type), field_path)

    for key in data:
        logger.warning("Unrecognized key %s in config, ignoring.",
                       join_path(path, format_key(key)))

    return obj_class(**kw_args)


def _parse_sequence(data: object, obj_class: type[_T], path: str) -> _T:
    args = typing.get_args(obj_class)
    if not isinstance(data, list):
        raise ConfigTypeError(path, "a list", data)

    # tuple[T, ...] and list[T] are homogeneous, any other tuple is a
    # fixed-length record.
    homogeneous = typing.get_origin(obj_class) is list \
        or (len(args) == 2 and args[1] is Ellipsis)
    if homogeneous:
        items = [parse_config_obj(x, args[0], f"{path}[{i}]")
                 for i, x in enumerate(data)]
    else:
        if len(args) != len(data):
            raise ConfigError(
                f"Expected {path} to have {len(args)} elements, "
                f"got {len(data)}")
        items = [parse_config_obj(x, type_, f"{path}[{i}]")
                 for i, (type_, x) in enumerate(zip(args, data))]
    return typing.get_origin(obj_class)(items)


def parse_config_obj(data: object, obj_class: type[_T], path: str) -> _T:
    """Convert the TOML value data into an instance of obj_class.

    path is the dotted position of data in the file, for errors.

    raise (ConfigError): if data does not fit obj_class.

    """
    if typing.get_origin(obj_class) in (typing.Union, types.UnionType):
        # Only "T | None" is supported; TOML has no null, so data must be
        # a T.
        args = typing.get_args(obj_class)
        assert len(args) == 2 and args[1] is type(None)
        obj_class = args[0]

    origin = typing.get_origin(obj_class)
    if dataclasses.is_dataclass(obj_class):
        return _parse_dataclass(data, obj_class, path)

    elif origin is dict:
        key_type, value_type = typing.get_args(obj_class)
        assert key_type is str
        if not isinstance(data, dict):
            raise ConfigTypeError(path, "a table", data)
        return typing.cast(_T, {
            k: parse_config_obj(v, value_type, join_path(path, format_key(k)))
            for k, v in data.items()})

    elif origin in (tuple, list):
        return _parse_sequence(data, obj_class, path)

    elif obj_class is bool:
        if not isinstance(data, bool):
            raise ConfigTypeError(path, "bool", data)
        return data

    elif obj_class in (str, int):
        # bool is a subclass of int, but true is not a valid integer here.
        if not isinstance(data, obj_class) or isinstance(data, bool):
            raise ConfigTypeError(path, obj_class.__name__, data)
        return data

    elif obj_class is float:
        # Integers are accepted where floats are expected.
        if not isinstance(data, int | float) or isinstance(data, bool):
            raise ConfigTypeError(path, "float", data)
        return typing.cast(_T, float(data))

    else:
        raise AssertionError(
            f"Unsupported type found in configuration: {obj_class}")
