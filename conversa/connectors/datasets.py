"""
Reference data served by the bundled static adapters.
"""

from typing import Dict, Any

from .base import SourceCapability

# source id -> {"capability": SourceCapability, "tables": {data type -> table}}
# Each table lists the query keywords that select it; the first table is the default.
SOURCE_DATASETS: Dict[str, Dict[str, Any]] = {
    "shopify": {
        "capability": SourceCapability(
            source_id="shopify",
            data_types=["products", "orders", "customers", "inventory", "analytics"],
            operations=["get", "filter", "sort", "aggregate", "search"],
            supports_realtime=False,
            batch_size=250,
            rate_limit=2,
        ),
        "tables": {
            "products": {
                "keywords": ["product", "selling", "item"],
                "records": [
                    {"id": 1, "title": "Wireless Headphones", "product_type": "Electronics",
                     "vendor": "TechCorp", "status": "active", "price": 99.99,
                     "inventory_quantity": 50, "units_sold": 320},
                    {"id": 2, "title": "Smart Watch", "product_type": "Electronics",
                     "vendor": "TechCorp", "status": "active", "price": 199.99,
                     "inventory_quantity": 25, "units_sold": 210},
                ],
            },
            "orders": {
                "keywords": ["order", "sale"],
                "records": [
                    {"id": 1001, "total_price": 299.98, "financial_status": "paid",
                     "fulfillment_status": "fulfilled", "created_at": "2024-01-14T10:00:00Z"},
                    {"id": 1002, "total_price": 99.99, "financial_status": "paid",
                     "fulfillment_status": "unfulfilled", "created_at": "2024-01-15T09:30:00Z"},
                ],
            },
            "customers": {
                "keywords": ["customer", "user"],
                "records": [
                    {"id": 501, "email": "jane@example.com", "orders_count": 4, "total_spent": 640.0},
                    {"id": 502, "email": "sam@example.com", "orders_count": 1, "total_spent": 99.99},
                ],
            },
            "inventory": {
                "keywords": ["inventory", "stock", "available"],
                "records": [
                    {"sku": "WH-001", "available": 50, "location": "Main Warehouse"},
                    {"sku": "SW-001", "available": 25, "location": "Main Warehouse"},
                ],
            },
        },
    },
    "stripe": {
        "capability": SourceCapability(
            source_id="stripe",
            data_types=["payments", "subscriptions", "customers", "invoices", "charges"],
            operations=["get", "filter", "aggregate"],
            supports_realtime=True,
            batch_size=100,
            rate_limit=25,
        ),
        "tables": {
            "payments": {
                "keywords": ["payment", "revenue", "transaction", "charge"],
                "records": [
                    {"id": "pi_1", "amount": 2999, "currency": "usd", "status": "succeeded"},
                    {"id": "pi_2", "amount": 4999, "currency": "usd", "status": "succeeded"},
                ],
            },
            "subscriptions": {
                "keywords": ["subscription", "recurring", "churn"],
                "records": [
                    {"id": "sub_1", "plan": "pro", "status": "active", "amount": 4900},
                    {"id": "sub_2", "plan": "basic", "status": "canceled", "amount": 1900},
                ],
            },
        },
    },
    "google-analytics": {
        "capability": SourceCapability(
            source_id="google-analytics",
            data_types=["sessions", "pageviews", "conversions", "audiences"],
            operations=["get", "aggregate", "group"],
            supports_realtime=True,
            batch_size=1000,
            rate_limit=10,
        ),
        "tables": {
            "sessions": {
                "keywords": ["traffic", "session", "visitor", "pageview"],
                "records": [
                    {"date": "2024-01-01", "sessions": 1000, "pageviews": 2500, "conversions": 31},
                    {"date": "2024-01-02", "sessions": 1200, "pageviews": 3000, "conversions": 42},
                ],
            },
        },
    },
    "salesforce": {
        "capability": SourceCapability(
            source_id="salesforce",
            data_types=["leads", "opportunities", "accounts", "contacts"],
            operations=["get", "filter", "search"],
            supports_realtime=False,
            batch_size=200,
            rate_limit=5,
        ),
        "tables": {
            "leads": {
                "keywords": ["lead", "prospect"],
                "records": [
                    {"id": "00Q1", "name": "John Doe", "status": "Open", "company": "Acme Corp"},
                    {"id": "00Q2", "name": "Jane Smith", "status": "Qualified", "company": "Tech Inc"},
                ],
            },
            "opportunities": {
                "keywords": ["opportunity", "deal", "pipeline"],
                "records": [
                    {"id": "006A", "name": "Acme renewal", "stage": "Negotiation", "amount": 12000},
                    {"id": "006B", "name": "Tech Inc expansion", "stage": "Prospecting", "amount": 8000},
                ],
            },
        },
    },
}
