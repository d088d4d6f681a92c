from __future__ import annotations


def _pick_glsl_version(ctx_version_code: int) -> int:
    """GLSL 330 on OpenGL >= 3.3, otherwise 150 (the project targets 3.2+ contexts)."""
    return 330 if ctx_version_code >= 330 else 150


# Vertex layout matches MeshBuffer.interleaved(): pos(3) norm(3) uv(2); uv is skipped on upload.
_VERT_BODY = """
in vec3 in_pos;
in vec3 in_norm;

uniform mat4 u_proj;
uniform mat4 u_view;
uniform vec3 u_offset;

out vec3 v_world_pos;
out vec3 v_norm;

void main() {
    vec3 world = in_pos + u_offset;
    v_world_pos = world;
    v_norm = in_norm;
    gl_Position = u_proj * u_view * vec4(world, 1.0);
}
"""

# Normals are already per-face, so lighting stays flat (low-poly look).
_FRAG_BODY = """
in vec3 v_world_pos;
in vec3 v_norm;

uniform vec3 u_light_dir;
uniform vec3 u_cam_pos;
uniform vec3 u_color;
uniform vec3 u_fog_color;
uniform float u_fog_start;
uniform float u_fog_end;

out vec4 f_color;

void main() {
    vec3 n = normalize(v_norm);
    vec3 l = normalize(u_light_dir);
    // Triangles may face away from the camera inside caves; light both sides.
    float diff = abs(dot(n, l));

    float ambient = 0.35;
    vec3 col = u_color * (ambient + 0.75 * diff);

    float dist = length(v_world_pos - u_cam_pos);
    float fog_amount = smoothstep(u_fog_start, u_fog_end, dist);
    f_color = vec4(mix(col, u_fog_color, fog_amount), 1.0);
}
"""


def shader_sources(ctx_version_code: int) -> tuple[str, str]:
    prefix = f"#version {_pick_glsl_version(ctx_version_code)}\n"
    return prefix + _VERT_BODY, prefix + _FRAG_BODY
