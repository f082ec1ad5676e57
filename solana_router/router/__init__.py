"""Query routing: intent, conversation context, planning, synthesis and the pipeline."""
