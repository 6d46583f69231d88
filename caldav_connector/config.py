#!/usr/bin/env python
"""
Connection configuration: where the server is and how to log in.

Settings are looked up in this order, the first source giving a server
url wins:

* keyword arguments
* environment variables prepended with `CALDAV_`, like `CALDAV_URL`,
  `CALDAV_USERNAME`, `CALDAV_PASSWORD`.  `CALDAV_CONFIG_FILE` and
  `CALDAV_CONFIG_SECTION` point to a config file
* a config file, JSON or (when PyYAML is installed) YAML, with one
  section per account.  A section may `inherits` another one, keys are
  prefixed with `caldav_`::

    {
      "default": {"caldav_url": "https://dav.example.com/",
                  "caldav_user": "alice", "caldav_pass": "secret"},
      "work": {"inherits": "default", "caldav_url": "https://work.example.com/"}
    }
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union

from caldav_connector.davclient import DAVClient
from caldav_connector.lib import error

log = logging.getLogger("caldav_connector")

DEFAULT_TIMEOUT = 30


@dataclass
class ConnectionParams:
    server_url: str
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    ssl_verify_cert: Union[bool, str] = True

    def client_kwargs(self) -> Dict[str, Any]:
        return {
            "url": self.server_url,
            "username": self.username,
            "password": self.password,
            "timeout": self.timeout,
            "ssl_verify_cert": self.ssl_verify_cert,
        }


def config_section(config, section="default"):
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn):
    """
    Reads a config file.  Without a file name, the usual locations
    are tried.  Returns an empty dict if nothing usable was found.
    """
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config"
        for config_file in (
            f"{cfgdir}/caldav/calendar.conf",
            f"{cfgdir}/caldav/calendar.yaml",
            f"{cfgdir}/caldav/calendar.json",
            f"{cfgdir}/calendar.conf",
            "/etc/calendar.conf",
            "/etc/caldav/calendar.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return {}

    try:
        with open(fn, "rb") as config_file:
            return json.load(config_file)
    except FileNotFoundError:
        log.debug("no config file found at %s", fn)
        return {}
    except json.decoder.JSONDecodeError:
        pass

    ## Late import, yaml is an optional dependency
    try:
        import yaml
    except ImportError:
        log.error(
            f"config file {fn} exists but is not valid json, and pyyaml is not installed."
        )
        return {}
    try:
        with open(fn, "rb") as config_file:
            return yaml.safe_load(config_file) or {}
    except yaml.YAMLError:
        log.error(
            f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
        )
        return {}


def _from_section(section: Dict[str, Any]) -> Dict[str, Any]:
    conn_params = {}
    for k in section:
        if k.startswith("caldav_") and section[k] not in (None, ""):
            key = k[7:]
            if key == "pass":
                key = "password"
            if key == "user":
                key = "username"
            conn_params[key] = section[k]
    return conn_params


def _from_environment() -> Dict[str, Any]:
    conf = {}
    for conf_key in (
        x
        for x in os.environ
        if x.startswith("CALDAV_") and not x.startswith("CALDAV_CONFIG")
    ):
        conf[conf_key[7:].lower()] = os.environ[conf_key]
    return conf


def _to_bool(value: Union[bool, str]) -> Union[bool, str]:
    ## strings from the environment or a config file; anything not
    ## boolean-like is a CA-bundle path
    if isinstance(value, str):
        if value.lower() in ("false", "0", "no", "off"):
            return False
        if value.lower() in ("true", "1", "yes", "on"):
            return True
    return value


def _build(conf: Dict[str, Any]) -> ConnectionParams:
    url = conf.get("url") or conf.get("server_url")
    if not url:
        raise error.ConfigurationError(reason="no server url given")
    try:
        timeout = float(conf.get("timeout") or DEFAULT_TIMEOUT)
    except ValueError as e:
        raise error.ConfigurationError(reason=f"invalid timeout: {e}") from e
    return ConnectionParams(
        server_url=url,
        username=conf.get("username"),
        password=conf.get("password"),
        timeout=timeout,
        ssl_verify_cert=_to_bool(conf.get("ssl_verify_cert", True)),
    )


def get_connection_params(
    config_file: Optional[str] = None,
    config_section_name: Optional[str] = None,
    environment: bool = True,
    check_config_file: bool = True,
    **kwargs,
) -> ConnectionParams:
    """
    Raises:
      ConfigurationError: no source gives a server url
    """
    if kwargs.get("url") or kwargs.get("server_url"):
        return _build(kwargs)

    if environment:
        conf = _from_environment()
        if conf.get("url"):
            return _build(conf)
        if not config_file:
            config_file = os.environ.get("CALDAV_CONFIG_FILE")
        if not config_section_name:
            config_section_name = os.environ.get("CALDAV_CONFIG_SECTION")

    if check_config_file:
        cfg = read_config(config_file)
        if cfg:
            section = config_section(cfg, config_section_name or "default")
            conn_params = _from_section(section)
            if conn_params:
                return _build(conn_params)

    raise error.ConfigurationError(reason="no CalDAV server configured")


def get_davclient(**kwargs):
    """
    A DAVClient for the configured account.  It will not try to
    connect.  Takes the same arguments as get_connection_params.
    """
    params = get_connection_params(**kwargs)
    return DAVClient(**params.client_kwargs())
