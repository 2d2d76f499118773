"""gifcompose — recipe-driven re-rendering of GIF animations.

Crop, scale, position and overlay frames of an existing animation
according to a declarative, nestable recipe. Recipes are declared in
YAML manifests and normalized into flat per-frame plans before
compositing.
"""
