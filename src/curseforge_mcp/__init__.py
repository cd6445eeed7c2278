"""
curseforge-mcp - CurseForge tools for AI agents over the Model Context Protocol.

Capability groups (enabled by the credentials that are configured):
1. public  - CFWidget lookups and session management (no credentials)
2. catalog - Core API search and metadata (CURSEFORGE_API_KEY)
3. upload  - File uploads to your projects (CURSEFORGE_AUTHOR_TOKEN)
4. web     - Comments, settings, descriptions (browser session cookies)
"""

__version__ = "0.2.0"
__author__ = "curseforge-mcp team"
