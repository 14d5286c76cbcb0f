"""s3aescp - Stream files to and from S3 with AES-CTR encryption."""

__version__ = "0.1.0"
