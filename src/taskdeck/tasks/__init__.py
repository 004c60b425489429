"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskDraft, TaskPatch, enums, MutationResult)
- task_store.py: owner of the collection, persistence of snapshots, mutations
- task_events.py: change notifications and their user-facing texts
- task_view.py: pure filter / sort / kanban grouping / stats derivations
"""
