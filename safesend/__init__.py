"""
SafeSend Contract Tooling
=========================

Python tooling for shipping the SafeSend contract.

Structure:
- deployment/: Contract deployment, confirmation and explorer verification
"""

__version__ = "1.0.0"
__author__ = "SafeSend Team"
