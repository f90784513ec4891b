"""
TaskWise Django project.
"""
