"""
ERP Reservations - hotel reservation management API
"""
__version__ = "1.0.0"
