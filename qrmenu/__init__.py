"""
                QR Menu Ordering

Backend for per-table QR menus: restaurant owners manage their menu and
tables from a dashboard, customers scan a table's QR code to order, and
new orders reach the dashboard in real time.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
