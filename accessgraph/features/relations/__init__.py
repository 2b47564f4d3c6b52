"""
Relation tuple feature module.

Holds the raw relationship facts (org roles, group membership and nesting,
resource ownership and ACL grants) that every dataset build starts from.
"""
