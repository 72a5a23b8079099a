#!/usr/bin/env python3
"""
Connection settings
Read from environment variables, optionally on top of a saved JSON profile
"""

import json
import os
from typing import Dict, List, Optional, Mapping

from .errors import ConfigurationError

PROFILES_FILE = os.path.join(os.path.expanduser("~"), ".bucket_shelf_profiles.json")

DEFAULT_REGION = 'us-east-1'

# setting name -> environment variables, first one set wins
ENVIRONMENT_VARIABLES = {
    'access_key': ['BUCKET_SHELF_ACCESS_KEY', 'EXOSCALE_ACCESS_KEY'],
    'secret_key': ['BUCKET_SHELF_SECRET_KEY', 'EXOSCALE_SECRET_KEY'],
    'region': ['BUCKET_SHELF_REGION', 'EXOSCALE_REGION'],
    'endpoint_url': ['BUCKET_SHELF_ENDPOINT', 'EXOSCALE_ENDPOINT'],
    'bucket_name': ['BUCKET_SHELF_BUCKET_NAME', 'EXOSCALE_BUCKET_NAME'],
}


class ConnectionSettings:
    """Everything needed to talk to one bucket"""

    def __init__(self, endpoint_url: str = "", bucket_name: str = "", access_key: str = "",
                 secret_key: str = "", region: str = ""):
        self.endpoint_url = endpoint_url.strip()
        self.bucket_name = bucket_name.strip()
        self.access_key = access_key.strip()
        self.secret_key = secret_key.strip()
        self.region = region.strip() or DEFAULT_REGION

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> 'ConnectionSettings':
        return cls(
            endpoint_url=data.get('endpoint_url') or "",
            bucket_name=data.get('bucket_name') or "",
            access_key=data.get('access_key') or "",
            secret_key=data.get('secret_key') or "",
            region=data.get('region') or "",
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'endpoint_url': self.endpoint_url,
            'bucket_name': self.bucket_name,
            'access_key': self.access_key,
            'secret_key': self.secret_key,
            'region': self.region,
        }

    def missing(self, require_credentials: bool = True) -> List[str]:
        """Names of the environment variables for unset settings"""
        required = ['endpoint_url', 'bucket_name']
        if require_credentials:
            required = ['access_key', 'secret_key'] + required
        return [ENVIRONMENT_VARIABLES[name][0] for name in required if not getattr(self, name)]

    def validate(self, require_credentials: bool = True) -> 'ConnectionSettings':
        """Raise ConfigurationError unless every required setting is present"""
        missing = self.missing(require_credentials)
        if missing:
            raise ConfigurationError(
                "Missing configuration: " + ", ".join(missing) +
                ". Set them in the environment or in a saved profile."
            )
        return self

    def masked_access_key(self) -> str:
        key = self.access_key
        return f"{key[:8]}...{key[-4:] if len(key) > 12 else '***'}"


def load_profile(profile_name: str, profiles_file: str = PROFILES_FILE) -> Dict[str, str]:
    """Load a named profile from the profiles file"""
    if not os.path.exists(profiles_file):
        raise ConfigurationError(f"Profiles file not found: {profiles_file}")

    try:
        with open(profiles_file, 'r') as f:
            profiles = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read profiles file {profiles_file}: {e}")

    if profile_name not in profiles:
        raise ConfigurationError(f"Profile '{profile_name}' not found in {profiles_file}")
    return profiles[profile_name]


def load_settings(environ: Optional[Mapping[str, str]] = None, profile_name: Optional[str] = None,
                  profiles_file: str = PROFILES_FILE) -> ConnectionSettings:
    """Build settings from a profile (if any) overridden by the environment

    Nothing is validated here so the UI can show and complete partial settings.
    """
    if environ is None:
        environ = os.environ

    data: Dict[str, str] = {}
    if profile_name:
        data.update(load_profile(profile_name, profiles_file))

    for name, variables in ENVIRONMENT_VARIABLES.items():
        for variable in variables:
            value = environ.get(variable, "").strip()
            if value:
                data[name] = value
                break

    return ConnectionSettings.from_dict(data)
