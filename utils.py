# utils.py
import random
import string
from datetime import datetime, timezone

def generate_random_id(prefix="", length=10):
    """Generate a random ID with optional prefix"""
    random_str = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
    return f"{prefix}-{random_str}" if prefix else random_str

def generate_user_id():
    return generate_random_id("USER")

def generate_product_id():
    return generate_random_id("PROD")

def generate_order_id():
    return generate_random_id("ORDER")

def get_current_datetime():
    """Get current datetime in UTC"""
    return datetime.now(timezone.utc)

def page_bounds(page: int, limit: int):
    """Return (skip, limit) for a 1-based page number"""
    return (page - 1) * limit, limit

def page_count(total: int, limit: int) -> int:
    return (total + limit - 1) // limit
