"""Command line interface for utility-tool"""
