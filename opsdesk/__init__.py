# OpsDesk: business-operations desk with RMI-tagged tasks, ICE-ranked ideas and SOPs
#
# Components:
#   schema.py        - Data model (Task, SubTask, Project, Idea, SOP, AppNotification, enums)
#   registry.py      - Entities, team roster and RMI focus metadata
#   access.py        - Role enforcement (Viewer is read-only)
#   events.py        - Synchronous event bus
#   store.py         - In-memory task and project store, recurrence
#   views.py         - Task filter, kanban and table projections, kanban drop
#   calendar_view.py - 42-cell month grid
#   ideas.py         - ICE ranking and promotion to tasks
#   notifications.py - Notification feed with relative timestamps
#   sops.py          - Standard operating procedure library
#   dashboard.py     - Dashboard aggregates
#   generator.py     - Text generation over the Gemini REST API
#   assistant.py     - Insights, SOP drafts and task suggestions
#   config.py        - YAML settings and logging setup
#   seed.py          - Static seed records
#   workspace.py     - Wires the above into one desk
