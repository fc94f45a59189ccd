# Tests for slidegraphics
