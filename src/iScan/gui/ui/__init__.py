"""Qt objects driving the editing session."""
