"""
The VIEW layer turns the tree model into a renderable hierarchy, handles
picking and animates falling debris. Qt widgets live in `widgets` and `tabs`.
"""
