"""
All the structures to describe the resources, their types, and the selectors.

All the functions here are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
