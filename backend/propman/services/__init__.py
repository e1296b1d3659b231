"""
Services: tenant context, memberships, scoped entity access, backups.

Routes call services; services call DAOs. Every tenant-owned service
derives from BaseService, which is the only place organization scoping
is applied.
"""
