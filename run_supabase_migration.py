#!/usr/bin/env python3
"""Check that the NABH tables exist, printing creation SQL for any that are missing."""
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.db.supabase_client import create_supabase

TABLE_SQL = {
    "nabh_chapters": """
        CREATE TABLE IF NOT EXISTS nabh_chapters (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            chapter_number INTEGER,
            name TEXT NOT NULL,
            code TEXT,
            created_at TIMESTAMPTZ DEFAULT now()
        );""",
    "nabh_objective_edits": """
        CREATE TABLE IF NOT EXISTS nabh_objective_edits (
            id BIGSERIAL PRIMARY KEY,
            chapter_code TEXT NOT NULL,
            objective_code TEXT NOT NULL,
            title TEXT,
            interpretation TEXT,
            interpretations2 TEXT,
            updated_at TIMESTAMPTZ DEFAULT now()
        );""",
    "nabh_sop_documents": """
        CREATE TABLE IF NOT EXISTS nabh_sop_documents (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            chapter_code TEXT NOT NULL,
            chapter_name TEXT,
            title TEXT NOT NULL,
            description TEXT,
            google_drive_url TEXT,
            google_drive_file_id TEXT,
            pdf_url TEXT,
            pdf_urls JSONB DEFAULT '[]'::jsonb,
            extracted_content TEXT,
            version TEXT DEFAULT '1.0',
            effective_date TEXT,
            review_date TEXT,
            category TEXT,
            department TEXT,
            author TEXT,
            status TEXT DEFAULT 'Active',
            tags JSONB DEFAULT '[]'::jsonb,
            is_public BOOLEAN DEFAULT false,
            created_by TEXT,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now()
        );""",
    "nabh_document_levels": """
        CREATE TABLE IF NOT EXISTS nabh_document_levels (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            level INTEGER NOT NULL CHECK (level BETWEEN 1 AND 5),
            title TEXT NOT NULL,
            description TEXT,
            file_url TEXT,
            file_type TEXT,
            version TEXT DEFAULT '1.0',
            status TEXT DEFAULT 'Active',
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now()
        );""",
    "nabh_generated_sops": """
        CREATE TABLE IF NOT EXISTS nabh_generated_sops (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            chapter_id TEXT,
            chapter_code TEXT NOT NULL,
            chapter_name TEXT,
            objective_code TEXT,
            objective_title TEXT,
            title TEXT NOT NULL,
            html_content TEXT NOT NULL,
            version TEXT DEFAULT '1.0',
            document_number TEXT,
            pdf_url TEXT,
            filtered_text TEXT,
            merged_content TEXT,
            prompt_template_id TEXT,
            created_by TEXT,
            status TEXT DEFAULT 'Draft',
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now()
        );""",
    "nabh_sop_prompts": """
        CREATE TABLE IF NOT EXISTS nabh_sop_prompts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name TEXT NOT NULL,
            description TEXT,
            category TEXT,
            prompt_text TEXT NOT NULL,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now()
        );""",
    "nabh_chapter_data": """
        CREATE TABLE IF NOT EXISTS nabh_chapter_data (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            chapter_id TEXT NOT NULL,
            objective_code TEXT,
            data_type TEXT NOT NULL CHECK (data_type IN ('documentation', 'final_sop')),
            content TEXT NOT NULL,
            created_by TEXT DEFAULT 'System',
            created_at TIMESTAMPTZ DEFAULT now()
        );""",
}


def run_migration():
    supabase = create_supabase(get_settings())
    missing = []

    print("🚀 Checking NABH tables")
    for table in TABLE_SQL:
        try:
            supabase.table(table).select("id").limit(1).execute()
            print(f"✅ {table}")
        except Exception as e:
            print(f"❌ {table}: {e}")
            missing.append(table)

    if missing:
        print("💡 Run this SQL in your Supabase SQL editor:")
        for table in missing:
            print(TABLE_SQL[table])
        sys.exit(1)

if __name__ == "__main__":
    run_migration()
