#!/usr/bin/env python3
"""
Error types for bucket operations
Every failure surfaced to the UI is one of these, with a readable message
"""

from typing import Optional

from botocore.exceptions import (
    ClientError, NoCredentialsError, EndpointConnectionError, BotoCoreError
)


class StorageError(Exception):
    """Base class for all bucket related failures"""


class ConfigurationError(StorageError):
    """Required connection settings are missing"""


class AccessError(StorageError):
    """Backend refused the request for the given credentials"""


class NotFoundError(StorageError):
    """Bucket or key does not exist"""


class TransportError(StorageError):
    """Network failure or non-success HTTP status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StreamError(StorageError):
    """Failure while reading a download body"""


def translate_boto_error(error: Exception, bucket_name: str, key: Optional[str] = None) -> StorageError:
    """Map a boto3/botocore exception onto the error taxonomy"""
    if isinstance(error, NoCredentialsError):
        return AccessError("Invalid credentials. Please check your access key and secret key.")
    if isinstance(error, EndpointConnectionError):
        return TransportError("Cannot connect to the endpoint. Please check the URL.")
    if isinstance(error, ClientError):
        error_code = error.response.get('Error', {}).get('Code', '')
        error_message = error.response.get('Error', {}).get('Message', '') or str(error)
        status_code = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode')

        if error_code == 'NoSuchBucket':
            return NotFoundError(f"Bucket '{bucket_name}' does not exist or isn't accessible.")
        if error_code in ('NoSuchKey', '404'):
            if key:
                return NotFoundError(f"File '{key}' does not exist in bucket '{bucket_name}'.")
            return NotFoundError(f"Bucket '{bucket_name}' does not exist or isn't accessible.")
        if error_code == 'InvalidAccessKeyId':
            return AccessError("Invalid access key. Please check your access key setting.")
        if error_code == 'SignatureDoesNotMatch':
            return AccessError("Invalid secret key. Please check your secret key setting.")
        if error_code in ('AccessDenied', '403') or status_code == 403:
            return AccessError(
                "Access denied. Your API key doesn't have permission for this bucket. "
                "Please check the key's IAM permissions or try different credentials."
            )
        return TransportError(f"Storage error: {error_message}", status_code=status_code)
    if isinstance(error, BotoCoreError):
        return TransportError(f"Storage error: {error}")
    return StorageError(str(error))


def error_for_status(status_code: int, reason: str, what: str) -> StorageError:
    """Build the error for a non-success HTTP response"""
    message = f"{what} failed: {status_code} {reason}".rstrip()
    if status_code == 403:
        return AccessError(message)
    if status_code == 404:
        return NotFoundError(message)
    return TransportError(message, status_code=status_code)


def describe_error(error: BaseException) -> str:
    """Human readable message for anything that reaches the UI"""
    if isinstance(error, StorageError):
        return str(error)
    return f"Unexpected error: {error}"
