"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants for CRS codes and geometry rules
- crs: CRS resolution and operand guards
- exceptions: Custom exception hierarchy
"""
