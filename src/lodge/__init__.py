"""Lodge admin backend domain package.

Models, DynamoDB-backed services and maintenance scripts shared by the
REST API (``lodge_api``) and operational tooling.
"""

__version__ = "0.1.0"
