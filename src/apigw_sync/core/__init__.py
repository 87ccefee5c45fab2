"""Core configuration and settings for apigw_sync."""
