"""
                        Services Module

Contains all business logic services. Services that talk to external
systems have Mock/in-process (development) and Real (production)
implementations chosen by ENV_MODE.

Services:
    - auth, profile: owner accounts, branding, plan gating
    - catalog, tables, menu: menu data and the public QR menu
    - ordering: cart, order workflow and status flow
    - realtime: order feed to dashboards (memory / Redis)
    - dashboard: aggregates and dashboard view state
    - storage: uploaded images
    - notifications: owner emails (mock / SendGrid)
"""
