#!/usr/bin/env python3
"""
Complete Pipeline Demo: Survey → Selection → Variables → Documents

Shows the full workflow on the example formation survey:
1. Analyze the template configuration
2. Select templates for the survey
3. Transform answers into document variables
4. Generate the document set with a plain-text renderer
"""

import logging
from datetime import datetime

from surveydoc.analyzer import analyze_templates
from surveydoc.context import RenderContext
from surveydoc.examples import build_example_formation_setup
from surveydoc.generation import generate_documents
from surveydoc.placeholders import generate_preview_text
from surveydoc.rules import select_templates
from surveydoc.transformer import TransformOptions, transform_survey_to_variables


class PreviewRenderer:
    """Renders a template as 'name: {placeholder}' lines instead of DOCX."""

    def render(self, template, variables):
        lines = [f"{name}: {{{name}}}" for name in sorted(m.variable_name for m in template.variables)]
        return generate_preview_text("\n".join(lines), variables).encode("utf-8")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    setup = build_example_formation_setup()
    options = TransformOptions(
        document_number="FR-DEMO-0001",
        context=RenderContext.fixed(datetime(2026, 3, 2, 9, 30)),
    )

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: Survey → Selection → Variables → Documents")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Analyze configuration
    # =========================================================================
    print("\n1. ANALYZING TEMPLATES...")
    report = analyze_templates(setup.templates)
    print(f"   ✓ Templates: {report.total_templates} ({report.active_templates} active)")
    print(f"   ✓ Mappings: {report.total_mappings} {report.mappings_by_source}")
    print(f"   ✓ Manual variables: {[v.variable_name for v in report.manual_variables]}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 2: Select templates
    # =========================================================================
    print("\n2. SELECTING TEMPLATES...")
    selection = select_templates(setup.responses, setup.templates)
    for bucket in ("required", "suggested", "optional"):
        labels = [t.label for t in getattr(selection, bucket)]
        print(f"   ✓ {bucket:<9}: {labels}")

    # =========================================================================
    # STEP 3: Transform variables
    # =========================================================================
    print("\n3. TRANSFORMING VARIABLES...")
    mappings = [m for t in setup.templates for m in t.variables]
    variables = transform_survey_to_variables(setup.responses, mappings, options)
    for name in ("companyName", "COIDate", "authorizedSharesWords", "totalParValue",
                 "directorNames", "Founder1Share", "Founder2Share"):
        print(f"   {name:<22} = {variables.get(name)!r}")

    # =========================================================================
    # STEP 4: Generate documents
    # =========================================================================
    print("\n4. GENERATING DOCUMENTS...")
    generation = generate_documents(
        setup.responses,
        selection.required,
        PreviewRenderer(),
        overrides={"vestingStartDate": "2026-03-02"},
        repeat_selections={"spa": [0, 1]},
        options=options,
    )
    for document in generation.documents:
        print(f"   [{document.status}] {document.filename}")

    print("\n" + "=" * 80)
    print(f"DONE: {len(generation.successful)} generated, {len(generation.failed)} failed")
    print("=" * 80)


if __name__ == "__main__":
    main()
