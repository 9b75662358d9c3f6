"""Users app package.

Defines the staff user model (role plus a map of permission flags) and
the authorization gate consulted by every mutating booking and payment
operation. Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL
throughout the project.
"""
