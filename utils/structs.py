import warp as wp

@wp.struct
class TransformStruct:
    dx: float
    offset: wp.vec2
