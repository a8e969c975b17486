"""
config.py — Environment-driven settings for the POS service.

All values are read once at import time. Deployments override them through
environment variables (Docker/Kubernetes style); the defaults target a local
run against `mock_services.mock_backend`.
"""

import os

# Backend (compatible con Supabase: PostgREST + GoTrue)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "http://localhost:8002")
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "local-anon-key")

PRODUCTS_TABLE = os.environ.get("PRODUCTS_TABLE", "productos")
SALE_RPC_NAME = os.environ.get("SALE_RPC_NAME", "registrar_venta")

HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "5.0"))
HTTP_READ_TIMEOUT = float(os.environ.get("HTTP_READ_TIMEOUT", "8.0"))

# Caja
DEFAULT_PAYMENT_METHOD = os.environ.get("DEFAULT_PAYMENT_METHOD", "yape")
CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "S/.")

LOG_FILE = os.environ.get("POS_LOG_FILE", "pos_sales.log")
LOG_LEVEL = os.environ.get("POS_LOG_LEVEL", "INFO")
