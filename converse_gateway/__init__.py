"""
Converse Gateway

OpenAI Chat Completions compatible gateway in front of AWS Bedrock Converse,
with a streaming passthrough to the OpenAI API.
"""

__version__ = "0.1.0"
