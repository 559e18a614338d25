"""
Backend for the Mud Beaver website.

FastAPI service for blog posts, contact messages, internship applications
and service requirements, with file uploads forwarded to a media bucket.
"""
