"""
                        Order Desk

Order-management backend for a small food vendor: menu, customer
orders, order status tracking and live updates for admin displays.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
