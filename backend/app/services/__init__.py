"""
Services package
"""
