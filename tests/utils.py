def reload(obj):
    """Fresh copy from the database (FSM-protected models refuse refresh_from_db)."""
    return type(obj).objects.get(pk=obj.pk)
