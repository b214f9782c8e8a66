"""Booking engine services: allocation, conflicts, limits, lifecycle and availability"""
