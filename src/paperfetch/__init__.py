"""
paperfetch - resolve and download verified builds from a Fill metadata service.
"""
