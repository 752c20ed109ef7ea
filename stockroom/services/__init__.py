"""
Service layer.

- crud: row store and the generic EntityManager facade
- audit: AuditLogService (employee action log)
- domain: login, goods arrival and inventory services
"""
