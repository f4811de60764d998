# Supabase tables: study_groups, study_group_members, profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in repository.py

"""
Expected Supabase table structure:

study_groups:
- id: uuid (primary key)
- name: text (not null)
- subject: text (not null)
- description: text (nullable)
- max_members: integer (not null) - advisory, not enforced on join
- is_private: boolean (default: false)
- tags: text[] (nullable)
- creator_id: uuid (foreign key to auth.users.id, not null) - owner
- created_at: timestamp (default: now())

study_group_members:
- id: uuid (primary key)
- group_id: uuid (foreign key to study_groups.id, not null)
- user_id: uuid (foreign key to profiles.user_id, not null) - constraint name study_group_members_user_id_fkey
- role: text (not null, default: 'member') - values: admin, member
- created_at: timestamp (default: now())
- unique constraint on (group_id, user_id)

profiles:
- id: uuid (primary key) - the id shown as Member.id
- user_id: uuid (foreign key to auth.users.id, unique, not null)
- name: text
- email: text
- college: text
- branch: text
- year: integer
- is_verified: boolean (default: false)
- avatar_url: text (nullable)

Note: creator_id and user_id hold the auth subject id, never profiles.id.
"""

PROFILE_COLUMNS = "id, user_id, name, email, college, branch, year, is_verified, avatar_url"

MEMBER_PROFILE_JOIN = (
    "group_id, user_id, "
    "profiles!study_group_members_user_id_fkey (id, name, email, college, branch, year, is_verified, avatar_url)"
)
